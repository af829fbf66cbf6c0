"""Module entrypoint.

Allows:
    python -m sx_report -i sc_serv.log -o report.txt -s kwmr128
"""

from __future__ import annotations

from sx_report.cli import main

if __name__ == "__main__":
    main()
