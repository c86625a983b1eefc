"""
Circuit breaker status and provider simulation controls

Breakers and the sender live in whichever process delivers notifications.
With the celery backend that is the worker, so the API has nothing truthful
to report and these endpoints answer 409.
"""
from fastapi import APIRouter, Depends, HTTPException, Query
from app.core.container import Container, get_container
from app.services.sender import SimulatedSender
from app.utils.responses import api_response

router = APIRouter(prefix="/api/circuit-breaker", tags=["circuit-breaker"])


def _local_delivery(container: Container = Depends(get_container)) -> Container:
    if not container.delivers_in_process:
        raise HTTPException(
            status_code=409,
            detail="Notifications are delivered by Celery workers; breaker state is not held by the API process",
        )
    return container


def _simulated_sender(container: Container) -> SimulatedSender:
    if not isinstance(container.sender, SimulatedSender):
        raise HTTPException(status_code=409, detail="Provider simulation is disabled")
    return container.sender


@router.get("/status")
def circuit_breaker_status(container: Container = Depends(_local_delivery)):
    return api_response("Circuit breaker status retrieved", container.breaker.snapshot())


@router.get("/breakers")
def list_circuit_breakers(container: Container = Depends(_local_delivery)):
    """
    Snapshot of every breaker in the registry, keyed by name
    """
    snapshots = {name: breaker.snapshot() for name, breaker in container.breakers.all().items()}
    return api_response("Circuit breakers retrieved", snapshots)


@router.get("/simulation-settings")
def simulation_settings(container: Container = Depends(_local_delivery)):
    sender = _simulated_sender(container)
    return api_response("Simulation settings retrieved", {"enabled": True, **sender.settings()})


@router.post("/simulate-failure-rate")
def set_simulated_failure_rate(rate: float = Query(...), container: Container = Depends(_local_delivery)):
    """
    Change how often the simulated provider fails (0.0 - 1.0)
    """
    sender = _simulated_sender(container)
    try:
        sender.set_failure_rate(rate)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return api_response("Failure rate updated successfully", {
        "failure_rate": rate,
        "failure_percentage": f"{rate * 100:g}%",
    })
