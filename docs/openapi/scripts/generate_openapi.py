"""Write the stacsearch OpenAPI document as JSON and YAML."""

from __future__ import annotations

import sys
from pathlib import Path

import orjson
import yaml

from stacsearch.webservice.main import app


def main(outdir: str = "docs/openapi") -> None:
    target = Path(outdir)
    target.mkdir(parents=True, exist_ok=True)

    schema = app.openapi()
    (target / "stacsearch-openapi.json").write_bytes(orjson.dumps(schema, option=orjson.OPT_INDENT_2))
    (target / "stacsearch-openapi.yaml").write_text(yaml.safe_dump(schema, sort_keys=False), encoding="utf-8")


if __name__ == "__main__":
    main(*sys.argv[1:2])
