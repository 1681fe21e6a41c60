"""The login page shown by /authorize, and the base64 round trip it carries.

/authorize substitutes base64 copies of the relying party's parameters into
the template's placeholders.  The form submits them back, still encoded, to
/login_form_submit, which decodes them.  Encoding keeps arbitrary values
(URLs, quotes, ampersands) opaque to the HTML and the form encoding.

The template comes from LOGIN_TEMPLATE when set; otherwise the minimal
form below is used.
"""

from __future__ import annotations

import base64
import binascii
import logging
from pathlib import Path

from oidc_mock.core.errors import InvalidParameter

logger = logging.getLogger(__name__)

PLACEHOLDERS = ("<NONCE>", "<STATE>", "<REDIRECT_URI>", "<CLIENT_ID>")

_DEFAULT_TEMPLATE = """\
<!DOCTYPE html>
<html lang="en">
<head>
  <meta charset="utf-8">
  <meta name="viewport" content="width=device-width, initial-scale=1">
  <title>Sign in | mock OpenID Connect provider</title>
  <style>
    * { margin: 0; padding: 0; box-sizing: border-box; }
    body {
      font-family: system-ui, -apple-system, sans-serif;
      display: flex; justify-content: center; align-items: center;
      min-height: 100vh; background: #f5f5f5;
    }
    .card {
      background: #fff; padding: 2rem; border-radius: 8px;
      box-shadow: 0 2px 8px rgba(0,0,0,.1); width: 320px;
    }
    h1 { font-size: 1.25rem; margin-bottom: 1.5rem; text-align: center; }
    label { display: block; font-size: .85rem; margin-bottom: .25rem; }
    input[type=text] {
      width: 100%; padding: .5rem; margin-bottom: 1rem;
      border: 1px solid #ccc; border-radius: 4px; font-size: .95rem;
    }
    button {
      width: 100%; padding: .6rem; background: #111; color: #fff;
      border: none; border-radius: 4px; font-size: .95rem; cursor: pointer;
    }
  </style>
</head>
<body>
  <div class="card">
    <h1>Sign in</h1>
    <form method="get" action="/login_form_submit">
      <label for="username">Username</label>
      <input id="username" name="username" type="text" required autofocus>
      <input type="hidden" name="client_id" value="<CLIENT_ID>">
      <input type="hidden" name="nonce" value="<NONCE>">
      <input type="hidden" name="state" value="<STATE>">
      <input type="hidden" name="redirect_uri" value="<REDIRECT_URI>">
      <button type="submit">Log in</button>
    </form>
  </div>
</body>
</html>
"""


def b64encode_param(value: str) -> str:
    return base64.b64encode(value.encode("utf-8")).decode("ascii")


def b64decode_param(name: str, value: str) -> str:
    """Decode a base64 form value. Raises InvalidParameter on bad input."""
    try:
        raw = base64.b64decode(value, validate=True)
    except (binascii.Error, ValueError) as exc:
        raise InvalidParameter(name, f"Base64 decode error: {exc}") from exc
    try:
        return raw.decode("utf-8")
    except UnicodeDecodeError as exc:
        raise InvalidParameter(name, f"UTF8 decode error: {exc}") from exc


class LoginPage:
    def __init__(self, template: str = _DEFAULT_TEMPLATE) -> None:
        missing = [p for p in PLACEHOLDERS if p not in template]
        if missing:
            # Not fatal: a template may deliberately drop a field
            logger.warning("Login template lacks placeholders %s", ", ".join(missing))
        self._template = template

    @classmethod
    def from_file(cls, path: str | None) -> LoginPage:
        if path is None:
            return cls()
        template = Path(path).read_text(encoding="utf-8")
        logger.info("Loaded login template  path=%s", path)
        return cls(template)

    def render(self, *, client_id: str, nonce: str, state: str, redirect_uri: str) -> str:
        return (
            self._template.replace("<NONCE>", b64encode_param(nonce))
            .replace("<STATE>", b64encode_param(state))
            .replace("<REDIRECT_URI>", b64encode_param(redirect_uri))
            .replace("<CLIENT_ID>", b64encode_param(client_id))
        )
