import sys

from wsclient.app import main

raise SystemExit(main(sys.argv[1:]))
