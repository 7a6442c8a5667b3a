"""Services: commit history, changelogs and the end-to-end runner."""
