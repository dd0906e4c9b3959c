"""Decoding of raw trace payloads into validated Trace objects."""

import json
import logging
from collections.abc import Mapping
from typing import Any, Optional

from pydantic import ValidationError

from .models import Trace

logger = logging.getLogger(__name__)


def parse_trace(raw: Any) -> Optional[Trace]:
    """Normalize a trace payload from the backend.

    The trace endpoint returns the stored JSON blob as-is, which some clients
    (and older backends) hand over as a string. This function accepts either
    form and never raises: anything it cannot make sense of is reported as
    "no trace available".

    Parameters
    ----------
    raw : Any
        A Trace, a decoded JSON object, or a JSON document as str/bytes.

    Returns
    -------
    Optional[Trace]
        The validated trace, or None when no trace can be recovered.
        Hop order and ordinals are kept exactly as received.
    """
    if raw is None:
        return None
    if isinstance(raw, Trace):
        return raw

    if isinstance(raw, (bytes, bytearray)):
        try:
            raw = raw.decode("utf-8")
        except UnicodeDecodeError:
            logger.warning("Trace payload is not valid UTF-8")
            return None

    if isinstance(raw, str):
        if not raw.strip():
            return None
        try:
            raw = json.loads(raw)
        except ValueError as e:
            logger.warning(f"Unparseable trace payload: {e}")
            return None

    if not isinstance(raw, Mapping):
        logger.debug(f"Trace payload is {type(raw).__name__}, expected an object")
        return None

    try:
        return Trace.model_validate(dict(raw))
    except ValidationError as e:
        # Field validators are lenient, so this only triggers on nested junk
        logger.warning(f"Trace payload failed validation: {e.error_count()} errors")
        return None
