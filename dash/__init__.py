"""
Dash: 一時チャンネルを作成・クローズする Slack Bot。
"""
