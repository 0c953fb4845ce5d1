#!/usr/bin/env python3

"""Intel HEX, Binary and C Include converter"""

import local
from hexc.tool import main


if __name__ == '__main__':
    main()
