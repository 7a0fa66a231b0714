# main.py
from campus_nav.app.cli import main

if __name__ == "__main__":
    raise SystemExit(main())
