# AI Core module
# Owner: ③ AI Core · Generation · Learning Owner

"""
AI Core Module - drafting release notes and learning from corrections.

Key responsibilities:
- Release note prompt construction (bug facts, commits, learned guidelines, examples)
- Model calls with deadline and retry
- Response parsing and confidence calibration
- Pattern extraction from manager corrections and example selection
"""
