"""
Oracle capabilities for RemoteAnswer.

External, optional text services. Every call fails open:
- Base: Capability interface and the null oracle
- Gemini: Product recommendations and sales copy from Gemini
- Search: Discards superseded search results
"""
