"""
Session Payload Codec — session state to bytes and back.

Payload format (jsonpickle, with non string keys kept):
    {"v": 1, "d": <session mapping>}

jsonpickle keeps datetimes, bytes, tuples, sets, integer keys, big integers
and data models intact. Decoding never raises: anything unreadable is an
empty session.

Security Note:
    Payloads are only decoded after the cookie signature is verified, but
    restoring is still limited: tags that call arbitrary callables
    (``py/function``, ``py/repr``, ``py/mod``, ``py/initargs``) are refused
    and ``py/type`` (used by ``py/reduce``) must name a type from a small
    set of standard value modules. ``encode`` refuses the same payloads, so
    a cookie written by ``put`` can always be read back.
"""
import logging
from typing import Any, Optional
from collections.abc import Mapping

import jsonpickle
from jsonpickle.backend import json as json_backend
from jsonpickle.unpickler import loadclass
from datamodel import BaseModel
from pydantic import BaseModel as PydanticBaseModel

logger = logging.getLogger("navigator.cookie")

CODEC_VERSION = 1

_FORBIDDEN_TAGS = frozenset({"py/function", "py/repr", "py/mod", "py/initargs"})
_SAFE_TYPE_MODULES = frozenset({
    "datetime", "decimal", "uuid", "fractions", "collections",
})
_SAFE_TYPES = frozenset({
    "builtins.frozenset", "builtins.bytearray", "builtins.complex",
})


class ModelHandler(jsonpickle.handlers.BaseHandler):
    """ModelHandler.
    Flattens Data Models into their attribute dictionary.
    """
    def flatten(self, obj, data):
        data['__dict__'] = self.context.flatten(obj.__dict__, reset=False)
        return data

    def restore(self, obj):
        module_and_type = obj['py/object']
        mdl = loadclass(module_and_type)
        cls = mdl.__new__(mdl) if hasattr(mdl, '__new__') else object.__new__(mdl)
        cls.__dict__ = self.context.restore(obj['__dict__'], reset=False)
        return cls

jsonpickle.handlers.registry.register(BaseModel, ModelHandler, base=True)

class PydanticHandler(jsonpickle.handlers.BaseHandler):
    """PydanticHandler.
    Rebuilds Pydantic Models through validation.
    """
    def flatten(self, obj, data):
        data["__data__"] = self.context.flatten(obj.model_dump(), reset=False)
        return data

    def restore(self, obj):
        mdl = loadclass(obj["py/object"])
        return mdl.model_validate(
            self.context.restore(obj["__data__"], reset=False)
        )

jsonpickle.handlers.registry.register(PydanticBaseModel, PydanticHandler, base=True)


def _safe_type(name: Any) -> bool:
    if not isinstance(name, str):
        return False
    return name in _SAFE_TYPES or name.split(".", 1)[0] in _SAFE_TYPE_MODULES


def unsafe_tag(node: Any) -> Optional[str]:
    """Return the first tag of a flattened tree that restore must not run."""
    if isinstance(node, dict):
        for key, value in node.items():
            if key in _FORBIDDEN_TAGS:
                return key
            if key == "py/type" and not _safe_type(value):
                return f"py/type {value}"
            found = unsafe_tag(value)
            if found:
                return found
    elif isinstance(node, list):
        for item in node:
            found = unsafe_tag(item)
            if found:
                return found
    return None


def encode(state: Mapping[str, Any]) -> bytes:
    """encode.

        Serialize session state into a cookie payload.
    Args:
        state (Mapping): session data.

    Raises:
        TypeError: state is not a mapping, or holds values (functions,
            arbitrary callables) that decode would refuse.
        RuntimeError: state cannot be serialized.

    Returns:
        bytes: payload.
    """
    if state is None:
        state = {}
    if not isinstance(state, Mapping):
        raise TypeError(
            f"session state must be a mapping, got {type(state).__name__}"
        )
    try:
        flat = jsonpickle.Pickler(keys=True).flatten(
            {"v": CODEC_VERSION, "d": dict(state)}
        )
    except Exception as err:
        raise RuntimeError(err) from err
    tag = unsafe_tag(flat)
    if tag:
        raise TypeError(f"session state cannot be stored in a cookie ({tag})")
    return json_backend.encode(flat).encode("utf-8")


def decode(payload: bytes) -> dict:
    """decode.

        Rebuild session state from a payload; never fails loudly.
    Args:
        payload (bytes): payload produced by encode.

    Returns:
        dict: session data, empty when the payload is unreadable.
    """
    try:
        if isinstance(payload, (bytes, bytearray)):
            payload = bytes(payload).decode("utf-8")
        envelope = json_backend.decode(payload)
    except Exception as err:  # pylint: disable=W0703
        logger.debug("Discarding undecodable session payload: %s", err)
        return {}
    if not isinstance(envelope, dict) or envelope.get("v") != CODEC_VERSION:
        logger.debug("Discarding session payload with unknown format")
        return {}
    try:
        tag = unsafe_tag(envelope)
        if tag:
            logger.debug("Discarding session payload with forbidden tag: %s", tag)
            return {}
        state = jsonpickle.Unpickler(keys=True).restore(envelope).get("d")
    except Exception as err:  # pylint: disable=W0703
        logger.debug("Discarding unrestorable session payload: %s", err)
        return {}
    if not isinstance(state, Mapping):
        logger.debug("Discarding non mapping session payload")
        return {}
    return dict(state)
