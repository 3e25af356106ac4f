# ---------------------------------------------------------------------------
# Author  : Kyle <kyle@hacking-linux.com>
# Version : 20261017v1
# ---------------------------------------------------------------------------
"""Minimal HTML pages returned by the activation link."""

from html import escape

_PAGE = """<!DOCTYPE html>
<html lang="en">
<head>
  <meta charset="utf-8">
  <title>{title}</title>
  <style>
    body {{ font-family: sans-serif; display: flex; justify-content: center; margin-top: 10vh; }}
    .card {{ max-width: 28rem; padding: 2rem; border-radius: 8px; box-shadow: 0 2px 8px #0002; text-align: center; }}
    a {{ color: #2563eb; }}
  </style>
</head>
<body>
  <div class="card">
    <h1>{title}</h1>
    <p>{message}</p>
    <p><a href="{login_url}">Go to login</a></p>
  </div>
</body>
</html>
"""


def activation_success_html(login_url: str) -> str:
    return _PAGE.format(
        title="Account activated",
        message="Your email address has been confirmed. You can now log in.",
        login_url=escape(login_url, quote=True),
    )


def activation_error_html(login_url: str, reason: str) -> str:
    return _PAGE.format(
        title="Activation failed",
        message=escape(reason),
        login_url=escape(login_url, quote=True),
    )
