import sys

from rauc_installer.cli import main

sys.exit(main())
