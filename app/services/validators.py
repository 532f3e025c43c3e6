from services.exceptions import ValidationError


class BusinessRules:
    # Distance after which the form warns that a service is due
    SERVICE_INTERVAL_KM = 10000
    REQUIRED_VEHICLE_FIELDS = ("make", "model", "registration")

    @staticmethod
    def validate_vehicle_fields(make: str, model: str, registration: str):
        values = {"make": make, "model": model, "registration": registration}
        for field in BusinessRules.REQUIRED_VEHICLE_FIELDS:
            if not (values[field] or "").strip():
                raise ValidationError(f"Vehicle {field} is required.", f"vehicle.{field}")

    @staticmethod
    def validate_driver_name(name: str | None) -> str:
        cleaned = (name or "").strip()
        if not cleaned:
            raise ValidationError("Driver name is required.", "name")
        return cleaned

    @staticmethod
    def validate_mileage(mileage: int):
        if mileage < 0:
            raise ValidationError("Mileage cannot be negative.", "mileage")

    @staticmethod
    def is_service_due(last_known_mileage: int, current_mileage: int) -> bool:
        """True once the vehicle covered a full service interval since its last record."""
        if last_known_mileage <= 0:
            return False
        return current_mileage - last_known_mileage >= BusinessRules.SERVICE_INTERVAL_KM
