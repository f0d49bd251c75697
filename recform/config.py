"""
Pipeline configuration models and YAML I/O for recform.

A pipeline file is a human-editable description of a transformer tree::

    description: normalize partner feed
    steps:
      - name: key_to_lower_case
      - name: value_string_split_on_delimiter
        params: [",", TRIM_WHITESPACE]
      - for_each:
          name: value_string_to_native
      - nest:
          name: key_ensure_case_format
          params: [UPPER_CAMEL]
      - name: null_safe
        params:
          - transformer: {name: explode}
      - script: "value * 2"
        engine: python

Script steps need their engine registered first (see ``recform.scripted``).

Each step is exactly one of: a registered primitive (``name`` + ``params``),
``compose`` (a list of steps), ``for_each``, ``nest``, or ``script``.  A
parameter that is itself a transformer is written as ``{transformer: step}``.

Key functions:
- load_pipeline(path) -> Transformer: load, validate, and build.
- save_pipeline(transformer, path): describe and write to YAML.
- build_transformer(step) / describe(transformer): convert between the
  models and live transformers.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any

import yaml
from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    ValidationError,
    field_validator,
    model_validator,
)

from recform.combinators import ForEach, Nest
from recform.composite import CompositeTransformer, compose
from recform.exceptions import ConfigValidationError, UnserializableTransformer
from recform.registry import TransformRegistry, default_registry
from recform.scripted import PYTHON, ScriptedTransformer
from recform.transformer import Primitive, Transformer

logger = logging.getLogger(__name__)

_STEP_KINDS = ("name", "compose", "for_each", "nest", "script")


class StepConfig(BaseModel):
    """One node of a transformer tree."""

    model_config = ConfigDict(extra="forbid")

    name: str | None = Field(None, description="Registered primitive name")
    params: list[Any] = Field(
        default_factory=list, description="Ordered constructor parameters"
    )
    compose: list[StepConfig] | None = None
    for_each: StepConfig | None = None
    nest: StepConfig | None = None
    script: str | None = None
    engine: str = Field(PYTHON, description="Script engine for 'script' steps")

    @field_validator("params")
    @classmethod
    def _parse_transformer_params(cls, params: list[Any]) -> list[Any]:
        """Turn ``{transformer: step}`` entries into ``TransformerParam`` models.

        An entry whose ``transformer`` value is not a valid step is an
        ordinary mapping parameter and is kept as-is.
        """
        return [_as_transformer_param(p) for p in params]

    @model_validator(mode="after")
    def _check_exactly_one_kind(self) -> StepConfig:
        kinds = [k for k in _STEP_KINDS if getattr(self, k) is not None]
        if len(kinds) != 1:
            raise ValueError(
                f"A step must define exactly one of {list(_STEP_KINDS)}, got {kinds}"
            )
        if self.params and self.name is None:
            raise ValueError("'params' is only allowed on 'name' steps")
        if self.compose is not None and not self.compose:
            raise ValueError("'compose' needs at least one step")
        return self


class TransformerParam(BaseModel):
    """A constructor parameter that is itself a transformer."""

    model_config = ConfigDict(extra="forbid")

    transformer: StepConfig


def _as_transformer_param(param: Any) -> Any:
    if not (isinstance(param, dict) and set(param) == {"transformer"}):
        return param
    try:
        return TransformerParam.model_validate(param)
    except ValidationError:
        return param


class PipelineConfig(BaseModel):
    """Top-level pipeline file.  Steps run in declaration order."""

    description: str = ""
    steps: list[StepConfig] = Field(..., min_length=1)


def build_transformer(
    step: StepConfig, registry: TransformRegistry | None = None
) -> Transformer:
    """Build the live transformer described by *step*.

    Raises:
        UnknownTransformer: If a step names an unregistered primitive.
        UndecodableParameters: If a primitive's params fit no constructor.
    """
    registry = registry if registry is not None else default_registry()
    if step.name is not None:
        params = [
            build_transformer(p.transformer, registry) if isinstance(p, TransformerParam) else p
            for p in step.params
        ]
        return registry.resolve(step.name, params)
    if step.compose is not None:
        return compose(*(build_transformer(s, registry) for s in step.compose))
    if step.for_each is not None:
        return ForEach(build_transformer(step.for_each, registry))
    if step.nest is not None:
        return Nest(build_transformer(step.nest, registry))
    return ScriptedTransformer(step.engine, step.script)


def build_pipeline(
    config: PipelineConfig, registry: TransformRegistry | None = None
) -> CompositeTransformer:
    return compose(*(build_transformer(s, registry) for s in config.steps))


def describe(transformer: Transformer) -> StepConfig:
    """Return the step model that rebuilds *transformer*.

    Raises:
        UnserializableTransformer: If the transformer has no description.
    """
    if isinstance(transformer, Primitive):
        descriptor = transformer.descriptor
        params = [
            TransformerParam(transformer=describe(p)) if isinstance(p, Transformer) else p
            for p in descriptor.params
        ]
        return StepConfig(name=descriptor.name, params=params)
    if isinstance(transformer, CompositeTransformer):
        return StepConfig(compose=[describe(t) for t in transformer.transformers])
    if isinstance(transformer, ForEach):
        return StepConfig(for_each=describe(transformer.inner))
    if isinstance(transformer, Nest):
        return StepConfig(nest=describe(transformer.inner))
    if isinstance(transformer, ScriptedTransformer):
        return StepConfig(script=transformer.script, engine=transformer.engine)
    raise UnserializableTransformer(f"{transformer!r} cannot be described as a pipeline step")


def describe_pipeline(transformer: Transformer, description: str = "") -> PipelineConfig:
    """Describe *transformer* as a pipeline; a composite's children become the steps."""
    if isinstance(transformer, CompositeTransformer):
        steps = [describe(t) for t in transformer.transformers]
    else:
        steps = [describe(transformer)]
    return PipelineConfig(description=description, steps=steps)


def load_pipeline_config(path: str | Path) -> PipelineConfig:
    """Load and validate a pipeline YAML file.

    Raises:
        FileNotFoundError: If the file does not exist.
        ConfigValidationError: If the file is empty.
        pydantic.ValidationError: If the content fails schema validation.
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Pipeline file not found: {path}")
    with open(path, "r", encoding="utf-8") as f:
        raw = yaml.safe_load(f)
    if raw is None:
        raise ConfigValidationError(f"Pipeline file is empty: {path}")
    logger.info("Loaded pipeline config from %s", path)
    return PipelineConfig.model_validate(raw)


def load_pipeline(
    path: str | Path, registry: TransformRegistry | None = None
) -> CompositeTransformer:
    """Load a pipeline YAML file and build its transformer."""
    config = load_pipeline_config(path)
    pipeline = build_pipeline(config, registry)
    logger.info("Built pipeline with %d step(s) from %s", len(config.steps), path)
    return pipeline


def save_pipeline(transformer: Transformer, path: str | Path, description: str = "") -> None:
    """Describe *transformer* and write it as a pipeline YAML file."""
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    config = describe_pipeline(transformer, description)
    data = config.model_dump(mode="json", exclude_none=True, exclude_defaults=True)
    with open(path, "w", encoding="utf-8") as f:
        f.write("# recform pipeline\n")
        f.write("# Steps run in order; edit params to adjust behavior.\n\n")
        yaml.dump(
            data,
            f,
            allow_unicode=True,
            default_flow_style=False,
            sort_keys=False,
        )
    logger.info("Saved pipeline to %s", path)
