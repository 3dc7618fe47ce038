from .encoding import (
    encode_blob,
    decode_blob,
    encode_log,
    canonical_content,
    parse_content,
    sign,
    verify_signature,
    build_payload
)
from .reporter import ResultReporter

__all__ = [
    'encode_blob',
    'decode_blob',
    'encode_log',
    'canonical_content',
    'parse_content',
    'sign',
    'verify_signature',
    'build_payload',
    'ResultReporter',
]
