#!/usr/bin/env python3
# -*- coding: utf-8 -*-

"""
Render or print checks from a saved layout model.
"""

# local repo modules
import check_print_layout.cli


if __name__ == "__main__":
	check_print_layout.cli.main()
