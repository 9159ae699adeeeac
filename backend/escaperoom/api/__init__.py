"""HTTP routes hosting the command dispatcher"""
