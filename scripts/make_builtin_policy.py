#!/usr/bin/env python
from __future__ import annotations

import argparse
import json
import sys
from pathlib import Path

sys.path.append(str(Path(__file__).resolve().parents[1]))

from supported_versions.core.config import DATA_DIR  # noqa: E402
from supported_versions.core.verifier import encode  # noqa: E402


def main() -> None:
    parser = argparse.ArgumentParser(description="Sign a supported-versions policy for bundling")
    parser.add_argument("--policy", required=True, help="Policy document (.json)")
    parser.add_argument("--private-key", required=True, help="RSA private key (PEM)")
    parser.add_argument(
        "--output",
        default=str(DATA_DIR / "supportedVersions.jwt"),
        help="Output token path",
    )
    args = parser.parse_args()

    policy = json.loads(Path(args.policy).read_text(encoding="utf-8"))
    private_key = Path(args.private_key).read_bytes()
    token = encode(policy, private_key)

    output = Path(args.output)
    output.parent.mkdir(parents=True, exist_ok=True)
    output.write_text(token, encoding="utf-8")

    print(f"Builtin supported versions token written: {output}")


if __name__ == "__main__":
    main()
