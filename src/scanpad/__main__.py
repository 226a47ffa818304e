import sys

from scanpad.cli import main

sys.exit(main())
