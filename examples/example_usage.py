"""Drive the service layer without Flask: a Sunday service with tallies.

Controllers are thin; every rule lives in the services used below.
"""

from datetime import date, datetime, time

from church_crm.container import build_container
from church_crm.people.model import PersonalData


def main():
    container = build_container(store_backend="memory")

    guest = container.person_service.register_guest(personal_data=PersonalData("Ada", "Obi", phone="+2348000000000"))
    program = container.program_service.create(
        name="Sunday Service",
        type="sunday-service",
        on_date=date.today(),
        start_time=time(9, 0),
        expected_attendance=5,
    )
    container.tally_service.generate_tallies_for_program(program.id)

    # Usher hands out a tally at the gate; identity is captured later.
    tally = container.tally_service.issue_tally(program.id, issued_by_user_id="usher-1")
    container.tally_service.map_tally_to_person(program.id, tally.code, guest.id, source="registration-card")

    print(container.person_service.get(guest.id).evolution)
    print(container.tally_service.report_for_program(program.id, now=datetime.now()))


if __name__ == "__main__":
    main()
