"""telperion - a request/response layer over directory servers"""
