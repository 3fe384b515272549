import json
import sys
from pathlib import Path

from divine_astro.schemas import ComputeRequest
from divine_astro.services.chart import build_chart


def main() -> None:
    in_path = Path(sys.argv[1])
    req = ComputeRequest.model_validate_json(in_path.read_text(encoding="utf-8"))
    output = json.dumps(build_chart(req).model_dump(mode="json"), indent=2, ensure_ascii=False)
    if len(sys.argv) > 2:
        out_path = Path(sys.argv[2])
        out_path.write_text(output, encoding="utf-8")
        print(f"Wrote chart → {out_path}")
    else:
        print(output)


if __name__ == "__main__":
    if len(sys.argv) < 2:
        print("Usage: python cli.py chart_input.json [chart.json]")
        sys.exit(1)
    main()
