import sys

from tickprint.app import main

sys.exit(main())
