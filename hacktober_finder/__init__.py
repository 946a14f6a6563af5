"""Hacktoberfest Repository & Issue Explorer.

Interactive terminal explorer for repositories tagged for a contribution event:
- Searches GitHub for topic-tagged repositories, one query per preferred language
- Deduplicates and ranks repositories by a relevance score
- Lists open issues per repository, ranked by estimated difficulty
- Loads data in the background so the keyboard never blocks
"""

__version__ = "1.0.0"
