"""
Custom exception hierarchy for recform.

Callers can catch a whole family (e.g. every ``DecodeError``) or a single
failure such as ``UnknownTransformer`` without inspecting messages.
"""


class RecformError(Exception):
    """Base exception for all recform errors."""


class InvalidPipeline(RecformError):
    """Raised when a pipeline cannot be constructed (e.g. zero children)."""


class UnconvertibleValue(RecformError, ValueError):
    """Raised when a leaf transform cannot coerce a value to its target type.

    The failure aborts the whole pipeline invocation for that key/value pair.
    """


class ScriptEvaluationFailed(RecformError):
    """Raised when a scripted transformer's script fails to evaluate.

    The original error is available as ``__cause__``.
    """


class UnknownScriptEngine(RecformError):
    """Raised when a scripted transformer names an unregistered engine."""


class UnserializableTransformer(RecformError):
    """Raised when a transformer carries no description that can be encoded.

    Ad-hoc function transformers fall in this category.
    """


class ConfigValidationError(RecformError):
    """Raised when a pipeline YAML file is empty or structurally invalid."""


class DecodeError(RecformError):
    """Base class for failures while decoding a serialized transformer."""


class UnsupportedTechnique(DecodeError):
    """Raised when the leading discriminator byte is not a known technique."""


class UnknownTransformer(DecodeError):
    """Raised when a described transformer's name is not in the registry."""


class UndecodableParameters(DecodeError):
    """Raised when no registered constructor accepts the given parameters.

    Covers both arity and type mismatches against every overload of a name.
    """


class MalformedPayload(DecodeError):
    """Raised when the byte stream is truncated, has trailing bytes, or
    names an unknown native type."""


class NestingTooDeep(DecodeError):
    """Raised when nested transformers exceed the maximum codec depth."""


class FrameIOError(RecformError):
    """Raised when a tabular file cannot be read or written."""
