#!/usr/bin/env python3
"""Configuration validation script."""

import sys
from pathlib import Path
from typing import List

# Add the project root to the Python path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from feeflow_app.config.loader import ConfigLoader
from feeflow_app.config.validation import ConfigValidator
from feeflow_app.errors import ConfigurationError, ValidationIssue


def validate_token_config(loader: ConfigLoader, token_mint: str) -> List[ValidationIssue]:
    """Validate the merged configuration for one token."""
    config = loader.merge_config(token_mint)
    return ConfigValidator.validate_config(config)


def main():
    """Validate engine.yaml and every token section of tokens.yaml."""
    print("Validating feeflow configuration...")

    loader = ConfigLoader.create()
    tokens = list(loader._read_yaml("tokens.yaml").get("tokens", {}) or {})
    # An unknown mint exercises engine.yaml plus defaults only
    mints = tokens + ["UNCONFIGURED-MINT"]

    all_valid = True

    for mint in mints:
        print(f"\n{mint}")
        try:
            issues = validate_token_config(loader, mint)
            loader.load_config(mint)
        except ConfigurationError as e:
            print(f"  error: {e}")
            all_valid = False
            continue

        if issues:
            print(f"  {len(issues)} validation issue(s):")
            for issue in issues:
                print(f"    {issue.field}: {issue.message} (value: {issue.value})")
            all_valid = False
        else:
            print("  ok")

    if all_valid:
        print("\nAll configuration validation passed")
        sys.exit(0)
    else:
        print("\nConfiguration validation failed")
        sys.exit(1)


if __name__ == "__main__":
    main()
