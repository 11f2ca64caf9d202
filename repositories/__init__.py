"""
repositories/ - Data Access Layer
==================================
Schedule stores. `ScheduleRepository` keeps schedules in PostgreSQL,
`InMemoryScheduleStore` keeps them in process; both return domain model
objects and guard every write with the record's version.
"""
