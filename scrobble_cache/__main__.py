import sys

from scrobble_cache.main import main

sys.exit(main())
