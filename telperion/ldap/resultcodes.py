"""Status codes returned by directory operations and their canonical descriptions

Codes 0-80 are the protocol result codes of RFC 4511. Codes 525-773 are the Active Directory sub-codes embedded in
the diagnostic message of an invalidCredentials (49) result. Negative codes are raised by the client side when no
result was received from the server at all.
"""


class ResultCode(object):
    """Result code constants"""

    SERVER_DOWN = -1
    LOCAL_ERROR = -2
    FILTER_ERROR = -7

    SUCCESS = 0
    OPERATIONS_ERROR = 1
    PROTOCOL_ERROR = 2
    TIMELIMIT_EXCEEDED = 3
    SIZELIMIT_EXCEEDED = 4
    COMPARE_FALSE = 5
    COMPARE_TRUE = 6
    AUTH_METHOD_NOT_SUPPORTED = 7
    STRONG_AUTH_REQUIRED = 8
    REFERRAL = 10
    ADMINLIMIT_EXCEEDED = 11
    UNAVAILABLE_CRITICAL_EXTENSION = 12
    CONFIDENTIALITY_REQUIRED = 13
    SASL_BIND_IN_PROGRESS = 14
    NO_SUCH_ATTRIBUTE = 16
    UNDEFINED_TYPE = 17
    INAPPROPRIATE_MATCHING = 18
    CONSTRAINT_VIOLATION = 19
    TYPE_OR_VALUE_EXISTS = 20
    INVALID_SYNTAX = 21
    NO_SUCH_OBJECT = 32
    ALIAS_PROBLEM = 33
    INVALID_DN_SYNTAX = 34
    INAPPROPRIATE_AUTH = 48
    INVALID_CREDENTIALS = 49
    ERROR_TOO_MANY_CONTEXT_IDS = 49
    INSUFFICIENT_ACCESS = 50
    BUSY = 51
    UNAVAILABLE = 52
    UNWILLING_TO_PERFORM = 53
    LOOP_DETECT = 54
    NAMING_VIOLATION = 64
    OBJECT_CLASS_VIOLATION = 65
    NOT_ALLOWED_ON_NONLEAF = 66
    NOT_ALLOWED_ON_RDN = 67
    ALREADY_EXISTS = 68
    NO_OBJECT_CLASS_MODS = 69
    RESULTS_TOO_LARGE = 70
    AFFECTS_MULTIPLE_DSAS = 71
    OTHER = 80

    # Active Directory
    USER_NOT_FOUND = 525
    NOT_PERMITTED_TO_LOGON_AT_THIS_TIME = 530
    RESTRICTED_TO_SPECIFIC_MACHINES = 531
    PASSWORD_EXPIRED = 532
    ACCOUNT_DISABLED = 533
    ACCOUNT_EXPIRED = 701
    USER_MUST_RESET_PASSWORD = 773

    @staticmethod
    def name(code):
        """Get the constant name of a code, or None if the code is unknown

        Constants are searched in declaration order, so where several share a code the first declared name is
        returned: 49 is ``INVALID_CREDENTIALS``, not ``ERROR_TOO_MANY_CONTEXT_IDS``.
        """
        for attr, value in vars(ResultCode).items():
            if attr.isupper() and value == code:
                return attr
        return None


MESSAGES = {
    ResultCode.SERVER_DOWN: "Can't contact LDAP server",
    ResultCode.LOCAL_ERROR: 'Local error',
    ResultCode.FILTER_ERROR: 'Bad search filter',
    ResultCode.SUCCESS: 'Success',
    ResultCode.OPERATIONS_ERROR: 'Operations error',
    ResultCode.PROTOCOL_ERROR: 'Protocol error',
    ResultCode.TIMELIMIT_EXCEEDED: 'Time limit exceeded',
    ResultCode.SIZELIMIT_EXCEEDED: 'Size limit exceeded',
    ResultCode.COMPARE_FALSE: 'Compare False',
    ResultCode.COMPARE_TRUE: 'Compare True',
    ResultCode.AUTH_METHOD_NOT_SUPPORTED: 'Authentication method not supported',
    ResultCode.STRONG_AUTH_REQUIRED: 'Strong(er) authentication required',
    ResultCode.REFERRAL: 'Referral',
    ResultCode.ADMINLIMIT_EXCEEDED: 'Administrative limit exceeded',
    ResultCode.UNAVAILABLE_CRITICAL_EXTENSION: 'Critical extension is unavailable',
    ResultCode.CONFIDENTIALITY_REQUIRED: 'Confidentiality required',
    ResultCode.SASL_BIND_IN_PROGRESS: 'SASL bind in progress',
    ResultCode.NO_SUCH_ATTRIBUTE: 'No such attribute',
    ResultCode.UNDEFINED_TYPE: 'Undefined attribute type',
    ResultCode.INAPPROPRIATE_MATCHING: 'Inappropriate matching',
    ResultCode.CONSTRAINT_VIOLATION: 'Constraint violation',
    ResultCode.TYPE_OR_VALUE_EXISTS: 'Type or value exists',
    ResultCode.INVALID_SYNTAX: 'Invalid syntax',
    ResultCode.NO_SUCH_OBJECT: 'No such object',
    ResultCode.ALIAS_PROBLEM: 'Alias problem',
    ResultCode.INVALID_DN_SYNTAX: 'Invalid DN syntax',
    ResultCode.INAPPROPRIATE_AUTH: 'Inappropriate authentication',
    ResultCode.INVALID_CREDENTIALS: 'Invalid credentials',
    ResultCode.INSUFFICIENT_ACCESS: 'Insufficient access',
    ResultCode.BUSY: 'Server is busy',
    ResultCode.UNAVAILABLE: 'Server is unavailable',
    ResultCode.UNWILLING_TO_PERFORM: 'Server is unwilling to perform',
    ResultCode.LOOP_DETECT: 'Loop detected',
    ResultCode.NAMING_VIOLATION: 'Naming violation',
    ResultCode.OBJECT_CLASS_VIOLATION: 'Object class violation',
    ResultCode.NOT_ALLOWED_ON_NONLEAF: 'Operation not allowed on non-leaf',
    ResultCode.NOT_ALLOWED_ON_RDN: 'Operation not allowed on RDN',
    ResultCode.ALREADY_EXISTS: 'Already exists',
    ResultCode.NO_OBJECT_CLASS_MODS: 'Cannot modify object class',
    ResultCode.RESULTS_TOO_LARGE: 'Results too large',
    ResultCode.AFFECTS_MULTIPLE_DSAS: 'Operation affects multiple DSAs',
    ResultCode.OTHER: 'Internal (implementation specific) error',
    ResultCode.USER_NOT_FOUND: 'User not found',
    ResultCode.NOT_PERMITTED_TO_LOGON_AT_THIS_TIME: 'Not permitted to logon at this time',
    ResultCode.RESTRICTED_TO_SPECIFIC_MACHINES: 'Not permitted to logon at this workstation',
    ResultCode.PASSWORD_EXPIRED: 'Password expired',
    ResultCode.ACCOUNT_DISABLED: 'Account disabled',
    ResultCode.ACCOUNT_EXPIRED: 'Account expired',
    ResultCode.USER_MUST_RESET_PASSWORD: 'User must reset password',
}

# Outcomes that carry a usable result rather than an operation failure
SUCCESS_CODES = frozenset([
    ResultCode.SUCCESS,
    ResultCode.SIZELIMIT_EXCEEDED,
    ResultCode.COMPARE_FALSE,
    ResultCode.COMPARE_TRUE,
])

# Active Directory reports invalidCredentials again as sub-code 52e
VENDOR_INVALID_CREDENTIALS = '52e'


def describe(code):
    """Get the canonical description for a result code

    :param int code: The result code
    :return: The description, or ``'Unknown error'`` for codes outside the table
    :rtype: str
    """
    return MESSAGES.get(code, 'Unknown error')


def is_success(code):
    """Check if a result code counts as a successful outcome"""
    return code in SUCCESS_CODES
