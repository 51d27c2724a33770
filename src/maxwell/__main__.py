import sys

from maxwell.cli import main

sys.exit(main())
