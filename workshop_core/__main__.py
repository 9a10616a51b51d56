import sys

from workshop_core.cli import main

sys.exit(main())
