"""
Temma Attributes - interceptors attached to controllers and actions.

Exports:
- Attribute, Guard, AttributeContext: base classes
- Auth: current user checks
- Check (Check.Params, Check.Payload): input validation
- Method, Get, Post, Put, Patch, Delete, Head: HTTP method checks
- Redirect, Referer: redirection and Referer checks
- View, Template: response view selection
"""

from .auth import Auth
from .base import ATTRIBUTES_FIELD, Attribute, AttributeContext, Guard, attributes_of
from .check import Check, CheckParams, CheckPayload
from .method import Delete, Get, Head, Method, Patch, Post, Put
from .redirect import Redirect, Referer
from .view import Template, View

__all__ = [
    "ATTRIBUTES_FIELD",
    "Attribute",
    "AttributeContext",
    "Guard",
    "attributes_of",
    "Auth",
    "Check",
    "CheckParams",
    "CheckPayload",
    "Method",
    "Get",
    "Post",
    "Put",
    "Patch",
    "Delete",
    "Head",
    "Redirect",
    "Referer",
    "View",
    "Template",
]
