#!/usr/bin/env python3
"""
smmadmin - Social media admin panel backend
Version: 1.0.0

This is the main entry point for the smmadmin service.
"""

from smmadmin.main import main

if __name__ == "__main__":
    main()
