"""
Concall Analyser Services - ingestion, cleanup, queries and analytics.

Core Services:
- bse_client: Exchange announcement API adapter
- document_fetcher: Attachment downloads into the working directory
- summarizer & llm_service: Summarizer interface and Gemini factory
- ingestion_pipeline: Fetch, filter, download, summarize and persist
- cleanup_service: "NA" purge and duplicate collapse
- query_service: Paged listing and name search
- analytics_service: Background event recording
"""
