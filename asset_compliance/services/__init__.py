"""
Read-side services built on the managers: analytics summaries, the combined
history feed and cache warming
"""
