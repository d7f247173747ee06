from __future__ import annotations

import sys

from tickprint.app import main


if __name__ == "__main__":
    # python apps/run_ticker.py [--rate 2]
    sys.exit(main())
