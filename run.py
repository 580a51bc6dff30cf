#!/usr/bin/env python3
"""Launcher for running the tab switch probe from a source checkout."""
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent / "src"))

if __name__ == "__main__":
    from run_probe import main
    main(sys.argv[1:])
