"""Order lifecycle: statuses, role modes, transitions and history"""
