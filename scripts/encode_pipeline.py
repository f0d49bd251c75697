"""
Convert a recform pipeline between its YAML and binary forms.

Usage:
    python scripts/encode_pipeline.py pipeline.yaml              # -> pipeline.tfrm
    python scripts/encode_pipeline.py pipeline.tfrm              # -> pipeline.yaml
    python scripts/encode_pipeline.py pipeline.yaml out.tfrm     # explicit output
    python scripts/encode_pipeline.py pipeline.yaml --python-scripts

The direction is chosen from the input suffix.  A decoded pipeline is
written back as YAML so it can be reviewed and edited by hand.

Pipelines with ``script`` steps need --python-scripts, which enables the
Python script engine.  Pass it only for trusted files.
"""

from __future__ import annotations

import logging
import sys
from pathlib import Path

# ---------------------------------------------------------------------------
# Configuration
# ---------------------------------------------------------------------------

BINARY_SUFFIX = ".tfrm"
YAML_SUFFIXES = (".yaml", ".yml")

# ---------------------------------------------------------------------------
# Logging setup
# ---------------------------------------------------------------------------

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s  %(levelname)-8s  %(name)s  %(message)s",
    datefmt="%H:%M:%S",
)
log = logging.getLogger("encode_pipeline")


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def _yaml_to_binary(source: Path, target: Path) -> None:
    from recform import encode, load_pipeline

    pipeline = load_pipeline(source)
    data = encode(pipeline)
    target.write_bytes(data)
    log.info("Encoded %s -> %s (%d bytes)", source, target, len(data))


def _binary_to_yaml(source: Path, target: Path) -> None:
    from recform import decode, save_pipeline

    pipeline = decode(source.read_bytes())
    save_pipeline(pipeline, target, description=f"decoded from {source.name}")
    log.info("Decoded %s -> %s", source, target)


# ---------------------------------------------------------------------------
# Main
# ---------------------------------------------------------------------------

def main() -> int:
    args = [a for a in sys.argv[1:] if a != "--python-scripts"]
    if "--python-scripts" in sys.argv:
        from recform import PYTHON, evaluate_python, register_engine

        register_engine(PYTHON, evaluate_python)

    if not 1 <= len(args) <= 2:
        print(__doc__)
        return 2

    source = Path(args[0])
    if not source.exists():
        log.error("Input not found: %s", source)
        return 1

    if source.suffix in YAML_SUFFIXES:
        target = Path(args[1]) if len(args) == 2 else source.with_suffix(BINARY_SUFFIX)
        _yaml_to_binary(source, target)
    elif source.suffix == BINARY_SUFFIX:
        target = Path(args[1]) if len(args) == 2 else source.with_suffix(".yaml")
        _binary_to_yaml(source, target)
    else:
        log.error("Cannot tell direction from suffix '%s'", source.suffix)
        return 2
    return 0


if __name__ == "__main__":
    sys.exit(main())
