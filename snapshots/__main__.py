import sys

from snapshots.cli import main

sys.exit(main())
