"""
FundRegistry - Command Line Interface Package
"""
