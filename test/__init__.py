"""
ntails tests, run by pytest or by python -m test
"""
