"""Infrastructure adapters: Firestore, in-memory persistence, blob storage, messaging."""
