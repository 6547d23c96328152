"""
Servicio para interactuar con Supabase.
Este módulo lee de la base de datos los horarios, citas, doctores y precios
que necesita el motor de disponibilidad.
"""
import logging
from datetime import date
from typing import Any, Dict, Iterable, List, Optional, Union
from supabase import create_client, Client

from app.domain.entities.models import (
    Appointment, AvailabilityBlock, DoctorProfile, ScheduleEntry, StorageUnavailableError
)
from app.infrastructure.config.config.settings import SUPABASE_URL, SUPABASE_KEY

logger = logging.getLogger(__name__)

class SupabaseService:
    """Clase para gestionar las consultas de agenda en Supabase."""

    def __init__(self):
        """Inicializa el servicio de Supabase con las credenciales."""
        self.client: Optional[Client] = None
        self.connected = False
        self._connect()

    def _connect(self) -> None:
        """Establece la conexión con Supabase."""
        if not all([SUPABASE_URL, SUPABASE_KEY]):
            logger.warning("Las credenciales de Supabase no están configuradas")
            return

        try:
            self.client = create_client(SUPABASE_URL, SUPABASE_KEY)
            self.connected = True
            logger.info("Conexión a Supabase establecida correctamente")
        except Exception as e:
            logger.error(f"Error al conectar con Supabase: {str(e)}")
            self.connected = False

    def is_connected(self) -> bool:
        """Verifica si la conexión está activa."""
        return self.connected and self.client is not None

    def _execute(self, operation: str, query) -> List[Dict[str, Any]]:
        """
        Ejecuta una consulta y devuelve sus filas.

        Raises:
            StorageUnavailableError: Si no hay conexión o la consulta falla
        """
        if not self.is_connected():
            logger.error(f"Supabase no disponible para {operation}")
            raise StorageUnavailableError(f"Supabase no está configurado ({operation})")

        try:
            response = query.execute()
        except Exception as e:
            logger.error(f"Error en {operation}: {str(e)}")
            raise StorageUnavailableError(f"Error al consultar {operation}: {str(e)}") from e

        return response.data or []

    async def get_doctors(self,
                          organization_id: str,
                          doctor_id: Optional[str] = None,
                          service_id: Optional[str] = None) -> Dict[str, DoctorProfile]:
        """
        Obtiene los doctores disponibles de una organización.

        Args:
            organization_id: ID de la organización
            doctor_id: Restringe la búsqueda a un doctor (ID de perfil)
            service_id: Restringe la búsqueda a los doctores que prestan el servicio

        Returns:
            Diccionario de DoctorProfile indexado por ID de perfil
        """
        if not self.is_connected():
            raise StorageUnavailableError("Supabase no está configurado (doctores)")

        query = self.client.table("doctors") \
            .select("id, profile_id, specialization, consultation_fee, profiles(first_name, last_name)") \
            .eq("organization_id", organization_id) \
            .eq("is_available", True)
        if doctor_id:
            query = query.eq("profile_id", doctor_id)
        rows = self._execute("doctores", query)

        if service_id:
            service_rows = self._execute(
                "servicios por doctor",
                self.client.table("doctor_services").select("doctor_id").eq("service_id", service_id)
            )
            allowed = {row["doctor_id"] for row in service_rows}
            rows = [row for row in rows if row.get("profile_id") in allowed or row.get("id") in allowed]

        doctors = {}
        for row in rows:
            profile = row.get("profiles") or {}
            name = f"Dr. {profile.get('first_name', '')} {profile.get('last_name', '')}".strip()
            doctors[row["profile_id"]] = DoctorProfile(
                id=row["profile_id"],
                name=name,
                specialization=row.get("specialization"),
                consultation_fee=row.get("consultation_fee")
            )
        return doctors

    async def get_doctor_schedules(self,
                                   organization_id: str,
                                   doctor_ids: Iterable[str],
                                   location_id: Optional[str] = None,
                                   include_inactive: bool = False) -> List[ScheduleEntry]:
        """
        Obtiene los horarios semanales de los doctores.

        Args:
            organization_id: ID de la organización
            doctor_ids: IDs de perfil de los doctores
            location_id: Filtra los horarios de una sede
            include_inactive: Incluye los horarios desactivados (validación de conflictos)

        Returns:
            Lista de ScheduleEntry; vacía si ningún doctor tiene horario
        """
        ids = list(doctor_ids)
        if not ids:
            return []
        if not self.is_connected():
            raise StorageUnavailableError("Supabase no está configurado (horarios)")

        query = self.client.table("doctor_availability") \
            .select("id, doctor_id, day_of_week, start_time, end_time, is_active, location_id, notes") \
            .in_("doctor_id", ids)
        if not include_inactive:
            query = query.eq("is_active", True)
        if location_id:
            query = query.eq("location_id", location_id)

        return [
            ScheduleEntry(
                id=row.get("id"),
                doctor_id=row["doctor_id"],
                organization_id=organization_id,
                day_of_week=row["day_of_week"],
                start_time=row["start_time"],
                end_time=row["end_time"],
                is_available=row.get("is_active", True),
                notes=row.get("notes"),
                location_id=row.get("location_id")
            )
            for row in self._execute("horarios", query)
        ]

    async def get_existing_appointments(self,
                                        organization_id: str,
                                        start_date: Union[str, date],
                                        end_date: Union[str, date],
                                        doctor_ids: Optional[Iterable[str]] = None) -> List[Appointment]:
        """
        Obtiene las citas no canceladas de un rango de fechas.

        Args:
            organization_id: ID de la organización
            start_date: Primera fecha del rango (incluida)
            end_date: Última fecha del rango (incluida)
            doctor_ids: Restringe las citas a estos doctores

        Returns:
            Lista de Appointment
        """
        if not self.is_connected():
            raise StorageUnavailableError("Supabase no está configurado (citas)")

        query = self.client.table("appointments") \
            .select("id, doctor_id, appointment_date, start_time, end_time, status") \
            .eq("organization_id", organization_id) \
            .gte("appointment_date", str(start_date)) \
            .lte("appointment_date", str(end_date)) \
            .neq("status", "cancelled")
        if doctor_ids is not None:
            query = query.in_("doctor_id", list(doctor_ids))

        return [
            Appointment(
                id=row.get("id"),
                doctor_id=row["doctor_id"],
                appointment_date=row["appointment_date"],
                start_time=row["start_time"],
                end_time=row["end_time"],
                status=row.get("status", "pending")
            )
            for row in self._execute("citas", query)
        ]

    async def get_availability_blocks(self,
                                      start_date: Union[str, date],
                                      end_date: Union[str, date],
                                      doctor_ids: Iterable[str]) -> List[AvailabilityBlock]:
        """
        Obtiene los bloqueos de agenda que tocan un rango de fechas.

        Los doctores ya vienen filtrados por organización, así que basta con
        restringir por sus IDs.

        Args:
            start_date: Primera fecha del rango (incluida)
            end_date: Última fecha del rango (incluida)
            doctor_ids: IDs de perfil de los doctores

        Returns:
            Lista de AvailabilityBlock
        """
        ids = list(doctor_ids)
        if not ids:
            return []
        if not self.is_connected():
            raise StorageUnavailableError("Supabase no está configurado (bloqueos)")

        query = self.client.table("availability_blocks") \
            .select("doctor_id, start_datetime, end_datetime, reason, block_type") \
            .in_("doctor_id", ids) \
            .lte("start_datetime", f"{end_date}T23:59:59") \
            .gte("end_datetime", f"{start_date}T00:00:00")

        return [
            AvailabilityBlock(
                doctor_id=row["doctor_id"],
                start_datetime=row["start_datetime"],
                end_datetime=row["end_datetime"],
                reason=row.get("reason"),
                block_type=row.get("block_type") or "blocked"
            )
            for row in self._execute("bloqueos", query)
        ]

    async def get_service_price(self, service_id: str) -> Optional[float]:
        """
        Obtiene el precio de un servicio.

        Returns:
            Precio del servicio o None si el servicio no tiene precio
        """
        if not self.is_connected():
            raise StorageUnavailableError("Supabase no está configurado (servicios)")

        rows = self._execute(
            "precio del servicio",
            self.client.table("services").select("price").eq("id", service_id).limit(1)
        )
        if rows and rows[0].get("price") is not None:
            return float(rows[0]["price"])
        return None

# Instancia global del servicio
supabase_service = SupabaseService()
