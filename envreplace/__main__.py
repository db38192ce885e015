import sys

from envreplace.cli.main import main

sys.exit(main())
