"""
Scripted transformer for recform.

A ``ScriptedTransformer`` delegates to a script evaluated by a pluggable
engine.  The script sees two bindings, ``key`` and ``value``.  If it returns
a mapping, that mapping replaces the original pair; any other result
replaces only the value and the original key is kept.

Engines are plain callables ``(script, bindings) -> result`` registered by
name.  No engine is registered by default.  ``evaluate_python`` runs the
script as Python source with full access to the interpreter: the trailing
expression is the result, or, if the script ends with a statement, whatever
``value`` is bound to afterwards.  Enable it only where every pipeline is
trusted::

    register_engine(PYTHON, evaluate_python)

Serialization is self-describing: the payload is the script text and the
engine name, nothing else.
"""

from __future__ import annotations

import ast
import functools
import logging
import threading
from abc import ABC, abstractmethod
from collections.abc import Callable, Mapping
from typing import Any

from recform.exceptions import (
    MalformedPayload,
    ScriptEvaluationFailed,
    UnknownScriptEngine,
    UnserializableTransformer,
)
from recform.result import Replacement, TransformResult
from recform.transformer import NativeTransformer, Transformer
from recform.values import is_mapping
from recform.wire import INT16_MAX, ByteReader, pack_str16

logger = logging.getLogger(__name__)

ScriptEvaluator = Callable[[str, Mapping[str, Any]], Any]

PYTHON = "python"


@functools.lru_cache(maxsize=256)
def _compile_python(script: str):
    """Compile *script* into (body, trailing expression or None)."""
    tree = ast.parse(script, filename="<script>", mode="exec")
    tail = None
    if tree.body and isinstance(tree.body[-1], ast.Expr):
        tail = ast.Expression(tree.body.pop().value)
        tail = compile(tail, "<script>", "eval")
    body = compile(tree, "<script>", "exec")
    return body, tail


def evaluate_python(script: str, bindings: Mapping[str, Any]) -> Any:
    """Evaluate *script* as Python with *bindings* as its namespace."""
    body, tail = _compile_python(script)
    namespace = dict(bindings)
    exec(body, namespace)
    if tail is not None:
        return eval(tail, namespace)
    return namespace.get("value")


_engines: dict[str, ScriptEvaluator] = {}
_engines_lock = threading.Lock()


def register_engine(name: str, evaluator: ScriptEvaluator) -> None:
    """Make *evaluator* available to scripted transformers as *name*."""
    with _engines_lock:
        _engines[name] = evaluator
    logger.info("Registered script engine '%s'", name)


def get_engine(name: str) -> ScriptEvaluator:
    try:
        return _engines[name]
    except KeyError:
        raise UnknownScriptEngine(
            f"Invalid script engine '{name}'. Available: {sorted(_engines)}"
        ) from None


class ScriptedTransformer(NativeTransformer):
    """A transformer whose behavior is a script run by a named engine."""

    __slots__ = ("_engine", "_script", "_evaluator")
    native_name = "scripted"

    def __init__(self, engine: str, script: str) -> None:
        self._evaluator = get_engine(engine)
        self._engine = engine
        self._script = script

    @property
    def engine(self) -> str:
        return self._engine

    @property
    def script(self) -> str:
        return self._script

    @classmethod
    def using_python(cls) -> Builder:
        return PythonTransformerBuilder()

    def transform(self, key: str, value: Any) -> TransformResult:
        try:
            result = self._evaluator(self._script, {"key": key, "value": value})
        except Exception as e:
            raise ScriptEvaluationFailed(
                f"Script for key '{key}' failed on engine '{self._engine}': {e}"
            ) from e
        if is_mapping(result):
            return Replacement(result)
        return Replacement.of(key, result)

    def write_native(self, encode: Callable[[Transformer], bytes]) -> bytes:
        for field, text in (("Script", self._script), ("Engine name", self._engine)):
            size = len(text.encode("utf-8"))
            if size > INT16_MAX:
                raise UnserializableTransformer(
                    f"{field} of {size} bytes is too long to encode"
                )
        return pack_str16(self._script) + pack_str16(self._engine)

    @classmethod
    def read_native(
        cls, reader: ByteReader, decode: Callable[[bytes], Transformer]
    ) -> ScriptedTransformer:
        script = reader.read_str16()
        engine = reader.read_str16()
        try:
            return cls(engine, script)
        except UnknownScriptEngine as e:
            raise MalformedPayload(str(e)) from e

    def __repr__(self) -> str:
        return f"ScriptedTransformer(engine={self._engine!r}, script={self._script!r})"


class Builder(ABC):
    """Accumulates script lines for a ``ScriptedTransformer``."""

    def __init__(self, engine: str) -> None:
        self._engine = engine
        self._lines: list[str] = []

    def build(self) -> ScriptedTransformer:
        return ScriptedTransformer(self._engine, "\n".join(self._lines))

    def define(self, var: str, value: str) -> Builder:
        """Bind *var* to the engine expression *value* within the script."""
        return self.interpret(self._define(var, value))

    def interpret(self, line: str) -> Builder:
        self._lines.append(line)
        return self

    @abstractmethod
    def _define(self, var: str, value: str) -> str:
        """Return the engine statement binding *var* to *value*."""


class PythonTransformerBuilder(Builder):
    def __init__(self) -> None:
        super().__init__(PYTHON)

    def _define(self, var: str, value: str) -> str:
        return f"{var} = {value}"
