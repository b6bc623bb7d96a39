"""
Core functionality for AWS Policy Finder.
"""

# Import core modules for easier access
from .models import SearchOptions, ErrorPolicy
from .search import search_resource
