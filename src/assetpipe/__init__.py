"""
assetpipe - Static asset build pipeline

Builds a static site from a source tree with:
- SCSS compilation with minified variants
- Script minification and verbatim copies of vendor files
- HTML assembly from <include> partials
- Image optimization (production) or copying (development)
- Dependency-aware sequential/concurrent task composition
- Watch mode with live reload through a development server
"""

__version__ = "0.1.0"
__package_name__ = "assetpipe"
__short_name__ = "assetpipe"
