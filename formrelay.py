import os
import re
import math
import types
import datetime
from dataclasses import dataclass, field
from typing import Callable, Mapping, Optional

import pytz
import requests
from bs4 import BeautifulSoup

# === DEFAULTS ===
BASE_URL = "https://docs.google.com/forms/d/e"
TOKEN_FIELD = "fbzx"

# Hidden fields Google expects next to the answers
RELAY_CONSTANTS = types.MappingProxyType({
    "fvv": "1",  # format version
    "draftResponse": "[]",  # empty saved draft
    "pageHistory": "0",  # single page form
})

SNIPPET_LENGTH = 200
SUCCESS_CODES = (200, 302)


# === CONFIG ===
@dataclass(frozen=True)
class RelayConfig:
    form_id: str
    base_url: str = BASE_URL
    token_field: str = TOKEN_FIELD
    constants: Mapping[str, str] = field(default_factory=lambda: RELAY_CONSTANTS)
    timeout: Optional[float] = 30
    follow_redirects: bool = True
    extractor: str = "regex"
    tz: str = "Asia/Jakarta"

    def __post_init__(self):
        object.__setattr__(self, "constants", types.MappingProxyType(dict(self.constants)))

    @property
    def view_url(self):
        return f"{self.base_url}/{self.form_id}/viewform"

    @property
    def submit_url(self):
        return f"{self.base_url}/{self.form_id}/formResponse"


def _parse_bool(value):
    lowered = value.strip().lower()
    if lowered in ("1", "true", "yes", "on"):
        return True
    if lowered in ("0", "false", "no", "off"):
        return False
    raise ValueError(f"invalid boolean: {value!r}")


def _parse_timeout(value):
    lowered = value.strip().lower()
    if lowered in ("", "0", "none"):
        return None
    timeout = float(lowered)
    if not math.isfinite(timeout) or timeout < 0:
        raise ValueError(f"invalid timeout: {value!r}")
    return timeout


def load_config(environ=None) -> RelayConfig:
    """Build the relay config from environment variables."""
    env = os.environ if environ is None else environ

    extractor = env.get("RELAY_EXTRACTOR", "regex")
    get_extractor(extractor)  # fail early on unknown strategy

    tz = env.get("RELAY_TZ", "Asia/Jakarta")
    try:
        pytz.timezone(tz)
    except pytz.UnknownTimeZoneError:
        raise ValueError(f"unknown timezone: {tz!r}") from None

    return RelayConfig(
        form_id=env.get("FORM_ID", ""),
        base_url=env.get("FORM_BASE_URL", BASE_URL).rstrip("/"),
        timeout=_parse_timeout(env.get("RELAY_TIMEOUT", "30")),
        follow_redirects=_parse_bool(env.get("RELAY_FOLLOW_REDIRECTS", "1")),
        extractor=extractor,
        tz=tz,
    )


# === ERRORS ===
class RelayError(Exception):
    pass


class TokenNotFound(RelayError):
    def __init__(self, name=TOKEN_FIELD):
        super().__init__(f"{name} token not found")
        self.name = name


class UpstreamUnreachable(RelayError):
    pass


class UpstreamError(RelayError):
    def __init__(self, code, snippet):
        super().__init__(f"upstream {code}: {snippet}")
        self.code = code
        self.snippet = snippet


# === RESULT ===
@dataclass(frozen=True)
class RelayResult:
    status: str
    code: Optional[int] = None
    snippet: str = ""
    message: str = ""

    @property
    def ok(self):
        return self.status == "ok"

    def __str__(self):
        if self.status == "ok":
            return "OK"
        if self.status == "token_not_found":
            return "ERR: token not found"
        if self.status == "upstream_error":
            return f"ERR: upstream {self.code}: {self.snippet}"
        return f"ERR: {self.message}"


OK = RelayResult("ok")


# === TOKEN EXTRACTION ===
def extract_token(html: str, name: str = TOKEN_FIELD) -> Optional[str]:
    """Pull ``name="<value>"`` out of raw HTML with a regex."""
    pattern = rf'name="{re.escape(name)}"[^>]*?value="([^"]*)"'
    match = re.search(pattern, html, re.IGNORECASE)
    return match.group(1) if match else None


def extract_token_html(html: str, name: str = TOKEN_FIELD) -> Optional[str]:
    """Same as extract_token, but walks the parsed document instead."""
    soup = BeautifulSoup(html, "html.parser")
    for inp in soup.find_all("input"):
        if (inp.get("name") or "").lower() == name.lower():
            value = inp.get("value")
            if value is not None:
                return value
    return None


EXTRACTORS = {
    "regex": extract_token,
    "html": extract_token_html,
}


def get_extractor(name) -> Callable[[str, str], Optional[str]]:
    try:
        return EXTRACTORS[name]
    except KeyError:
        raise ValueError(f"unknown token extractor: {name!r}") from None


# === LOGGING ===
def log(config, level, message):
    now = datetime.datetime.now(pytz.timezone(config.tz))
    ts = now.strftime("%Y-%m-%d %H:%M:%S %Z")
    print(f"[{ts}] {level.upper()}: {message}")


# === RELAY STEPS ===
def fetch_token(config, session) -> str:
    try:
        res = session.get(config.view_url, timeout=config.timeout)
    except requests.RequestException as e:
        raise UpstreamUnreachable(f"fetch failed: {e}") from e

    token = get_extractor(config.extractor)(res.text, config.token_field)
    if not token:
        raise TokenNotFound(config.token_field)
    return token


def build_payload(submission, token, config) -> dict:
    payload = dict(submission)
    payload[config.token_field] = token
    payload.update(config.constants)
    return payload


def post_submission(payload, config, session):
    try:
        res = session.post(
            config.submit_url,
            data=payload,
            allow_redirects=config.follow_redirects,
            timeout=config.timeout,
        )
    except requests.RequestException as e:
        raise UpstreamUnreachable(f"submit failed: {e}") from e

    if res.status_code not in SUCCESS_CODES:
        raise UpstreamError(res.status_code, res.text[:SNIPPET_LENGTH])
    return res


# === MAIN FUNCTION ===
def relay(submission, config: RelayConfig, session=None) -> RelayResult:
    """Fetch a fresh token, post the submission and report the outcome.

    Never raises: every failure is folded into the returned RelayResult.
    """
    session = requests if session is None else session
    try:
        if not config.form_id:
            raise RelayError("FORM_ID is not configured")
        token = fetch_token(config, session)
        payload = build_payload(submission, token, config)
        post_submission(payload, config, session)
        result = OK
    except TokenNotFound:
        result = RelayResult("token_not_found")
    except UpstreamError as e:
        result = RelayResult("upstream_error", code=e.code, snippet=e.snippet)
    except Exception as e:
        result = RelayResult("internal_error", message=str(e))

    level = "info" if result.ok else "error"
    try:
        log(config, level, f"{result} ({len(submission)} fields)")
    except pytz.UnknownTimeZoneError:
        pass
    return result


def ping() -> RelayResult:
    return OK
