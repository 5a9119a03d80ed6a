import sys

from shopnav.navigation_main import main

sys.exit(main())
