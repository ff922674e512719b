from celery import Celery

from toptens.config import CELERY_BROKER_URL, CELERY_RESULT_BACKEND, RECONCILE_INTERVAL_MINUTES


def create_celery_app():
    instance = Celery(
        "toptens",
        broker=CELERY_BROKER_URL,
        backend=CELERY_RESULT_BACKEND,
        include=["toptens.tasks"]
    )

    instance.conf.update(
        task_track_started=True,
        broker_connection_retry_on_startup=True,
        worker_prefetch_multiplier=1,
        beat_schedule={
            "reconcile-counters": {
                "task": "toptens.tasks.reconcile_counters_task",
                "schedule": RECONCILE_INTERVAL_MINUTES * 60,
            },
        },
    )
    return instance


# imported by the worker and beat: celery -A toptens.celery_app worker -B
celery_app = create_celery_app()
