import sys

from rolegate.server import main

sys.exit(main())
