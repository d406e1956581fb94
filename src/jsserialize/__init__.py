"""jsserialize — serialize Python values to JavaScript expressions, beyond JSON."""

from .serializer import EncodeOptions, encode
from .decoder import decode
from .config import create_options, load_config, load_from_yaml
from .errors import DecodeError, JSSerializeError, NativeFunctionError, UnsupportedValueError
from .types import HOLE, UNDEFINED, JSBigInt, JSFunction, JSMap, JSRegExp

__all__ = [
    "encode", "decode", "EncodeOptions",
    "create_options", "load_config", "load_from_yaml",
    "JSSerializeError", "NativeFunctionError", "UnsupportedValueError", "DecodeError",
    "UNDEFINED", "HOLE", "JSFunction", "JSRegExp", "JSMap", "JSBigInt",
]
__version__ = "0.1.0"
