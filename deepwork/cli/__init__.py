"""
CLI - Deep-Work Scheduler コマンドラインツール
"""
