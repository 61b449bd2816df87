"""On-demand mechanic marketplace API"""
