"""
Archivio locale della clinica.

Struttura:
- db.py             : engine e sessioni SQLAlchemy
- models.py         : tabella ORM delle collezioni JSON
- records.py        : record tipizzati (professionisti, pazienti, appuntamenti)
- storage.py        : backend di persistenza (SQLite o memoria)
- seed.py           : dati di esempio
- services.py       : archivio con integrità referenziale ed eliminazioni a cascata
- queries.py        : ricerca, filtri, ordinamento, selezione multipla
- finance.py        : ripartizione incassi clinica/professionista
- forms.py          : conversione dei valori dei form in input tipizzati
- api_main.py       : API HTTP (FastAPI)
- cli.py            : riga di comando
"""
