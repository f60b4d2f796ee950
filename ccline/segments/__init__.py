"""Segments that collect the model, directory, git, context, cost, session, style and usage data."""