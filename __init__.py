"""
Eliza - Script-driven conversational text transformer
=====================================================

A rule-driven conversational agent that answers each line of input by
substitution, keyword-triggered pattern decomposition and templated
reassembly, following a loadable conversation script:
1. Pre-substitution and sentence splitting of the input
2. Priority-ordered keyword search with decomposition patterns
3. Reassembly of a reply from captured fragments

Author: Eliza Engine Team
License: MIT
Version: 1.0.0
"""

__version__ = "1.0.0"
__author__ = "Eliza Engine Team"
__license__ = "MIT"
