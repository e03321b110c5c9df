#!/usr/bin/env python3
# -*- coding: UTF-8 -*-
from overf.cli import overf_expand

if __name__ == "__main__":
    overf_expand._parse_cli_args()
