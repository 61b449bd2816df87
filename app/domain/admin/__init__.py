"""Admin domain - Dashboard stats, provider approvals and regions"""
