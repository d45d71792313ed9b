import sys

from moodboard_client.main import main

sys.exit(main())
