"""
BillSplit Voice - Source Package

A conversational bill-splitting assistant that turns spoken or typed
sentences ("Alice owes me 12.50 for lunch") into ledger entries.

DESIGN PRINCIPLES:
1. Deterministic text understanding, no model inference
2. Cheap grammar first, permissive grammar only for complex sentences
3. Ask instead of guessing when a slot or a name is unclear
4. Money is always Decimal
5. Collaborators (ledger, voice, contacts) are swappable
"""

__version__ = "1.0.0"
__author__ = "BillSplit Voice Team"
