"""
Job calendar feature package.

This vertical slice keeps every layer of the office calendar co-located
(domain models, source repository, aggregation pipeline, event actions and
API router) so contributors can navigate the feature without hunting
through global folders.
"""
