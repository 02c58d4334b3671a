"""
Allow running the package directly: python -m scanbrot
"""
import sys

from .cli import main

sys.exit(main())
