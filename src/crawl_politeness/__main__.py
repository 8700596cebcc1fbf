"""Allow running with: python -m crawl_politeness"""

from .main import main

main()
