"""
admingate - admin console backend with Casbin-enforced authorization.
"""

__version__ = "0.1.0"
