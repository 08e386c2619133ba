"""Optional modules bundled with telperion

Enable one by instantiating it and calling ``enable()``, or list its class path under ``modules`` in a config file.
"""
