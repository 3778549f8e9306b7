"""
Build Ingestion Domain

Turns a completed upload (artifacts plus metadata.json) into stored records:
- Read the descriptor once it has finished being written
- Resolve or create the Project -> VersionGroup -> Version hierarchy
- Copy the downloads into permanent storage
- Insert the Build
- Clean up the staging directory
"""

__all__ = ["pipeline", "watchers"]
