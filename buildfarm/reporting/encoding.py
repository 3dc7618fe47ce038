"""
Canonical encoding and signing of build results.

The collector verifies the signature over the exact request body it
receives, so the body must survive the trip byte for byte. Log and
configuration blobs are base64 encoded (no line breaks) and then the two
base64 characters a form-urlencoded transport might rewrite, ``+`` and
``=``, are swapped for ``$`` and ``@``, which base64 never produces. The
swap is therefore exactly reversible and ``decode_blob(encode_blob(b))``
returns ``b`` for any byte string, including the empty one.

The signature is the hex SHA-1 of the canonical content immediately
followed by the shared secret.
"""
import base64
import hashlib
import hmac
from typing import Dict, Iterable, Optional, Union

from ..core.models import OK_STAGE, ResultPayload


RESERVED_CHARS = "+="
SENTINEL_CHARS = "$@"

_TO_SENTINELS = str.maketrans(RESERVED_CHARS, SENTINEL_CHARS)
_FROM_SENTINELS = str.maketrans(SENTINEL_CHARS, RESERVED_CHARS)

# order matters: it is part of what gets signed
CONTENT_FIELDS = ("branch", "res", "stage", "animal", "ts", "log", "conf")

# text that came from files read with surrogateescape keeps its raw bytes
TEXT_ENCODING = "utf-8"
TEXT_ERRORS = "surrogateescape"


def _to_bytes(data: Union[bytes, str]) -> bytes:
    if isinstance(data, str):
        return data.encode(TEXT_ENCODING, TEXT_ERRORS)
    return bytes(data)


def encode_blob(data: Union[bytes, str, None]) -> str:
    """Base64 encode and replace the transport-sensitive characters"""
    if not data:
        return ""
    encoded = base64.b64encode(_to_bytes(data)).decode("ascii")
    return encoded.translate(_TO_SENTINELS)


def decode_blob(blob: str) -> bytes:
    """Exact inverse of encode_blob"""
    if not blob:
        return b""
    return base64.b64decode(blob.translate(_FROM_SENTINELS), validate=True)


def encode_log(lines: Iterable[Union[bytes, str]]) -> str:
    """Encode captured log lines as one blob"""
    return encode_blob(b"".join(_to_bytes(line) for line in lines))


def canonical_content(branch: str, res: int, stage: str, animal: str, ts: int,
                      log: str, conf: str) -> str:
    """The exact string that is signed and sent as the request body"""
    values = {
        "branch": branch,
        "res": int(res),
        "stage": stage,
        "animal": animal,
        "ts": int(ts),
        "log": log,
        "conf": conf,
    }
    return "&".join(f"{name}={values[name]}" for name in CONTENT_FIELDS)


def parse_content(content: str) -> Dict[str, str]:
    """
    Split canonical content back into its fields.
    
    Safe because neither field separators nor ``=`` can appear in the
    encoded blobs.
    """
    fields = {}
    for part in content.split("&"):
        name, _, value = part.partition("=")
        fields[name] = value
    return fields


def sign(content: str, secret: str) -> str:
    """Hex SHA-1 of content followed by the shared secret"""
    digest = hashlib.sha1()
    digest.update(_to_bytes(content))
    digest.update(_to_bytes(secret))
    return digest.hexdigest()


def verify_signature(content: str, signature: str, secret: str) -> bool:
    """Check a signature the way the collector does"""
    return hmac.compare_digest(sign(content, secret), signature.lower())


def build_payload(
    branch: str,
    stage: str,
    status: int,
    animal: str,
    ts: int,
    log: Iterable[Union[bytes, str]],
    config_summary: Optional[str],
    secret: str
) -> ResultPayload:
    """
    Build the signed payload for a result.
    
    Args:
        branch: Branch that was built
        stage: Name of the failed stage, or "OK"
        status: Exit status of the failed stage, 0 for success
        animal: Name this client reports as
        ts: Epoch seconds the run started at
        log: Captured log lines
        config_summary: Configuration summary, None when not applicable
        secret: Shared secret
        
    Returns:
        ResultPayload
    """
    res = 0 if stage == OK_STAGE else int(status)
    log_blob = encode_log(log)
    conf_blob = encode_blob(config_summary)
    content = canonical_content(branch, res, stage, animal, ts, log_blob, conf_blob)
    return ResultPayload(
        branch=branch,
        res=res,
        stage=stage,
        animal=animal,
        ts=int(ts),
        log=log_blob,
        conf=conf_blob,
        content=content,
        signature=sign(content, secret),
    )
