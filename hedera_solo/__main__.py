"""Run the solo command line tool with `python -m hedera_solo`."""

from hedera_solo.tool.solo import main

main()
