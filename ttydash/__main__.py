import sys

from ttydash.app import main

sys.exit(main())
