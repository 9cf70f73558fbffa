"""
Catalog modules for RemoteAnswer.

Pure functions over the immutable product catalog:
- Loader: Read the catalog file
- Filtering: Category/text/oracle filtering and pagination
- Ratings: Blend baseline ratings with submitted reviews
- Pricing: Recent price trends for product cards
- Report: Ranked catalog table (pandas)
"""
