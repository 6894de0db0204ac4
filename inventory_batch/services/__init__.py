"""inventory_batch.services -- Job queue, compute scheduler and worker."""
