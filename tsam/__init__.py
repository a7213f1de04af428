"""
tsam - retrieve values from a Terraform state workspace as JSON.
"""

__version__ = "1.0.0"
