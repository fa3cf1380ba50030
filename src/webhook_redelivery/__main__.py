import sys

from webhook_redelivery.cli import main

sys.exit(main())
