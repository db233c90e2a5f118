"""
Core building blocks for insthugo: platform detection, install paths,
downloads, checksum verification and archive extraction.
"""
